import warnings

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGODB_URI: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "carrier_sales"
    API_KEY: str = "changeme"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8000"
    DOCS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"

    # FMCSA QCMobile registry. Without a web key every lookup fails upstream.
    FMCSA_API_KEY: str = ""
    FMCSA_BASE_URL: str = "https://mobile.fmcsa.dot.gov/qc/services/carriers"
    FMCSA_TIMEOUT_SECONDS: float = 10.0

    # Seed the loads collection at startup when it is empty.
    AUTO_SEED: bool = True

    model_config = {"env_file": ".env"}


settings = Settings()

if settings.API_KEY == "changeme":
    warnings.warn(
        "API_KEY is set to the default value 'changeme'. "
        "Set a strong API_KEY in your .env file for production.",
        stacklevel=1,
    )
