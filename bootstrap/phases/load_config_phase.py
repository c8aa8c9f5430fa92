from __future__ import annotations

from bootstrap.bootstrap_context import BootstrapContext, EngineState, Switch
from bootstrap.config import ConfigLoader
from bootstrap.exceptions import InstanceRegistrationError
from bootstrap.phases.base_phase import BootstrapPhase, PhaseResult
from bootstrap.processors import ConfiguratorResolver
from infrastructure.nacos import NacosConfig


class LoadConfigPhase(BootstrapPhase):
    """
    Reads the application config, derives the host address when unset and,
    with the remote-config switch on, connects the config/naming service and
    registers this server instance.
    """

    task_name = 'init_app_config'
    entry_state = EngineState.UNCONFIGURED
    exit_state = EngineState.CONFIG_LOADED

    def execute(self, context: BootstrapContext) -> PhaseResult:
        config = ConfigLoader(context.config_dir).load_app_config()
        context.config = config
        server = config.server
        if not server.host:
            server.host = context.local_ip()
            self.logger.debug(f"Server host derived from local network: {server.host}")

        warnings = []
        if context.enabled(Switch.ENABLE_NACOS) and config.nacos is not None:
            self._init_nacos(context, config.nacos)
        else:
            if context.enabled(Switch.ENABLE_NACOS):
                warnings.append("Remote config switch is on but config.yaml has no nacos settings; disabled")
            context.disable(Switch.ENABLE_NACOS)

        return PhaseResult.success_result(
            message=f"Application config loaded: name={server.name} url={server.http_url}{server.api_prefix}",
            warnings=warnings,
            metadata={'server': server.name, 'nacos': context.enabled(Switch.ENABLE_NACOS)},
        )

    def _init_nacos(self, context: BootstrapContext, nacos: NacosConfig) -> None:
        ConfiguratorResolver(context).resolve(nacos, must_run=True, required=True)
        if context.remote_config is None:
            context.remote_config = nacos.config_client
        if context.naming is None:
            context.naming = nacos.naming_client

        if nacos.enable_naming and context.naming is not None:
            instance = context.config.server.instance()
            try:
                context.naming.register_instance(instance)
            except Exception as e:
                raise InstanceRegistrationError(f"Failed to register server instance {instance.info()}: {e}",
                                                component_id=instance.name, phase=self.phase_name) from e
            self.logger.info(f"Server instance registered: {instance.info()}")
