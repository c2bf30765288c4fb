from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite:///./yuki.db"
    db_auto_create: bool = False

    # Session tokens
    jwt_secret: str
    jwt_alg: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    session_cookie_name: str = "yuki_session"
    session_cookie_secure: bool = False
    allow_wallet_header_auth: bool = True

    # Redis (nonces, passkey challenges, quote cache)
    redis_url: str = "redis://localhost:6379/0"

    # SIWE
    app_domain: str = "localhost"
    app_origin: str = "http://localhost:3000"
    siwe_nonce_ttl_seconds: int = 300

    # Passkeys (WebAuthn relying party)
    rp_id: str = "localhost"
    rp_name: str = "Yuki"
    rp_origin: str = "http://localhost:3000"
    passkey_challenge_ttl_seconds: int = 300
    passkey_timeout_ms: int = 60000
    passkey_allow_zero_counter: bool = False
    passkey_cookie_name: str = "yuki_passkey"

    # Wallets
    supported_chain_id: int = 1

    # Routing / handles
    login_path: str = "/login"
    handle_change_cooldown_days: int = 30
    extra_reserved_handles: list[str] = []

    # Uploads
    max_avatar_bytes: int = 4 * 1024 * 1024
    max_banner_bytes: int = 8 * 1024 * 1024
    uploadthing_token: str = ""
    uploadthing_app_id: str = ""
    uploadthing_api_url: str = "https://api.uploadthing.com"

    # Onramp
    coinbase_app_id: str = ""
    coinbase_onramp_api_key: str = ""
    moonpay_api_key: str = ""
    transak_api_key: str = ""
    ramp_api_key: str = ""
    onramp_timeout_seconds: float = 3.0
    quote_cache_ttl_seconds: int = 30

    log_level: str = "INFO"


settings = Settings()
