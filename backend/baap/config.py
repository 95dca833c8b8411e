from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file: str = "baap.log"

    # Money
    currency: str = "IDR"

    # Guarantee defaults
    default_guarantee_target: float = 0.95
    default_max_budget_increase: float = 0.2

    # Contracts
    contract_validity_days: int = 365
    provider_name: str = "JaTour Smart Travel Platform"
    provider_contact: str = "support@jatour.com"
    provider_signature: str = "JaTour_Platform_Auto_Signature"

    # Validation engine
    validation_timeout_ms: int = 5000
    validation_max_errors: int = 50

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
