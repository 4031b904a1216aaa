# The registry of environment config
ENVIRONMENT_CONFIG_REGISTRY = {}

# The registry of environment class
ENVIRONMENT_REGISTRY = {}


def register_environment_config(kind: str):
    def deco(cls):
        ENVIRONMENT_CONFIG_REGISTRY[kind] = cls
        return cls
    return deco


def register_environment(kind: str):
    def deco(cls):
        ENVIRONMENT_REGISTRY[kind] = cls
        return cls
    return deco


def create_environment(config):
    """Instantiate the environment registered under config.type."""
    env_cls = ENVIRONMENT_REGISTRY.get(config.type)
    if env_cls is None:
        raise ValueError(f"Unknown environment type: {config.type}. Known: {sorted(ENVIRONMENT_REGISTRY)}")
    return env_cls(config)
