from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "KEF Parking API"
    API_V1_STR: str = "/api/v1"
    APP_URL: str = "http://localhost:3000"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8
    LOG_LEVEL: str = "INFO"

    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "carpark_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Checkout spot hold
    RESERVATION_TTL_MINUTES: int = 10
    RESERVATION_SWEEP_SECONDS: int = 60

    # Outbound calls to payment / flight / registry providers
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Rate limits (requests per window, per client IP)
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_BOOKINGS: int = 5
    RATE_LIMIT_VEHICLE_LOOKUPS: int = 20
    RATE_LIMIT_FLIGHTS: int = 30

    # Rapyd payment gateway
    RAPYD_ACCESS_KEY: str = ""
    RAPYD_SECRET_KEY: str = ""
    RAPYD_SANDBOX_URL: str = "https://sandboxapi.rapyd.net"
    RAPYD_PRODUCTION_URL: str = "https://api.rapyd.net"
    RAPYD_WEBHOOK_PATH: str = "/api/v1/webhooks/rapyd"
    RAPYD_VERIFY_WEBHOOKS: bool = True
    PAYMENT_CURRENCY: str = "ISK"
    PAYMENT_COUNTRY: str = "IS"
    CHECKOUT_EXPIRATION_MINUTES: int = 60

    # Vehicle registry (rogg.is)
    VEHICLE_REGISTRY_URL: str = (
        "https://rogg.is/bizServices/CarRegistry/XmlService/CarService/v0703/CarDataByNumber.aspx"
    )
    VEHICLE_REGISTRY_USER: str = ""
    VEHICLE_REGISTRY_PASSWORD: str = ""

    # Flight data (kefairport.com)
    FLIGHTS_BASE_URL: str = "https://www.kefairport.com/flights"
    FLIGHT_LIST_CACHE_MINUTES: int = 120
    FLIGHT_STATUS_CACHE_MINUTES: int = 30
    FLIGHT_CACHE_KEEP_DAYS: int = 2

    # SMTP
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "noreply@carpark.is"
    SMTP_FROM_NAME: str = "CarPark"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def is_postgres(self) -> bool:
        return self.DATABASE_URL.startswith("postgresql")

    @property
    def rapyd_configured(self) -> bool:
        return bool(self.RAPYD_ACCESS_KEY and self.RAPYD_SECRET_KEY)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)


settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
