from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml

from chain.verifier import ChainConfig
from zk.errors import ConfigError
from zk.zk_proofs import ZKConfig

logger = logging.getLogger(__name__)


@dataclass
class SystemConfig:
    zk_config: ZKConfig = field(default_factory=ZKConfig)
    chain_config: ChainConfig = field(default_factory=ChainConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    log_level: str = "INFO"
    check_idempotence: bool = True
    verify_off_chain: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from a YAML file, defaults when it does not exist"""
    if config_path is None:
        config_path = Path("config.yaml")
    config_path = Path(config_path)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}, using defaults")
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not load config file {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    defaults = SystemConfig()

    zk_data = config_data.get('zk_proofs', {}) or {}
    zk_config = ZKConfig(
        snarkjs_bin=zk_data.get('snarkjs_bin', defaults.zk_config.snarkjs_bin),
        node_bin=zk_data.get('node_bin', defaults.zk_config.node_bin),
        build_dir=Path(zk_data.get('build_dir', defaults.zk_config.build_dir)),
        command_timeout=zk_data.get('command_timeout', defaults.zk_config.command_timeout)
    )

    chain_data = config_data.get('chain', {}) or {}
    chain_defaults = defaults.chain_config
    chain_config = ChainConfig(
        rpc_url=chain_data.get('rpc_url', chain_defaults.rpc_url),
        artifacts_dir=Path(chain_data.get('artifacts_dir', chain_defaults.artifacts_dir)),
        request_timeout=chain_data.get('request_timeout', chain_defaults.request_timeout),
        receipt_timeout=chain_data.get('receipt_timeout', chain_defaults.receipt_timeout),
        poll_interval=chain_data.get('poll_interval', chain_defaults.poll_interval),
        deploy_gas=chain_data.get('deploy_gas', chain_defaults.deploy_gas),
        from_address=chain_data.get('from_address', chain_defaults.from_address)
    )

    return SystemConfig(
        zk_config=zk_config,
        chain_config=chain_config,
        log_dir=Path(config_data.get('log_dir', defaults.log_dir)),
        results_dir=Path(config_data.get('results_dir', defaults.results_dir)),
        log_level=config_data.get('log_level', defaults.log_level),
        check_idempotence=config_data.get('check_idempotence', defaults.check_idempotence),
        verify_off_chain=config_data.get('verify_off_chain', defaults.verify_off_chain)
    )


def config_to_dict(config: SystemConfig) -> Dict[str, Any]:
    return {
        'zk_proofs': {
            'snarkjs_bin': config.zk_config.snarkjs_bin,
            'node_bin': config.zk_config.node_bin,
            'build_dir': str(config.zk_config.build_dir),
            'command_timeout': config.zk_config.command_timeout
        },
        'chain': {
            'rpc_url': config.chain_config.rpc_url,
            'artifacts_dir': str(config.chain_config.artifacts_dir),
            'request_timeout': config.chain_config.request_timeout,
            'receipt_timeout': config.chain_config.receipt_timeout,
            'poll_interval': config.chain_config.poll_interval,
            'deploy_gas': config.chain_config.deploy_gas,
            'from_address': config.chain_config.from_address
        },
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'log_level': config.log_level,
        'check_idempotence': config.check_idempotence,
        'verify_off_chain': config.verify_off_chain
    }


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = Path("config.yaml")

    with open(config_path, 'w') as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False)
