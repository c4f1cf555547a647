"""Receipt analysis core: models, rules and orchestration."""
