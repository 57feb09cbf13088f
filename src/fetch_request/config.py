"""
Configuration models and resolution for fetch-request.
"""
import base64
import os
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, SecretStr, model_validator

from .types import SigningContext

# Environment variables
ENV_METHOD = "FETCH_REQUEST_METHOD"
ENV_USE_RAW_URL = "FETCH_REQUEST_USE_RAW_URL"
ENV_TIMEOUT_MS = "FETCH_REQUEST_TIMEOUT_MS"
ENV_FOLLOW_REDIRECTS = "FETCH_REQUEST_FOLLOW_REDIRECTS"

DEFAULT_METHOD = "GET"

AuthType = Literal["basic", "bearer", "x-api-key", "custom"]
RealmScheme = Literal["basic", "digest", "ntlm", "spnego", "kerberos", "none"]


class BuilderConfig(BaseModel):
    """Defaults applied to newly created request builders."""
    method: str = DEFAULT_METHOD
    use_raw_url: bool = False
    request_timeout_in_ms: int = Field(default=0, ge=0, description="0 defers to the execution engine")
    follow_redirects: Optional[bool] = None


class ProxyServer(BaseModel):
    """Proxy the execution engine should route the request through."""
    host: str
    port: int = 80
    protocol: Literal["http", "https"] = "http"
    principal: Optional[str] = None
    password: Optional[SecretStr] = None
    non_proxy_hosts: List[str] = Field(default_factory=list)

    @property
    def url(self) -> str:
        """Proxy URL, with credentials when a principal is set."""
        auth = ""
        if self.principal:
            secret = self.password.get_secret_value() if self.password else ""
            auth = f"{self.principal}:{secret}@"
        return f"{self.protocol}://{auth}{self.host}:{self.port}"


class Realm(BaseModel):
    """Authentication realm handed to the execution engine as-is."""
    principal: str
    password: SecretStr
    scheme: RealmScheme = "basic"
    realm_name: Optional[str] = None
    use_preemptive_auth: bool = True


class AuthConfig(BaseModel):
    """Authentication configuration for header-based request signing."""
    type: AuthType
    raw_api_key: Optional[SecretStr] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    header_name: Optional[str] = None

    # Callback for dynamic key resolution
    get_api_key_for_request: Optional[Callable[[SigningContext], Optional[str]]] = None

    @property
    def api_key(self) -> str:
        """
        Get the computed API key ready for the header.
        - For basic: Returns the base64 encoded username:password
        - For bearer/x-api-key/custom: Returns the raw key
        """
        if self.type == "basic" and self.username and self.password:
            credentials = f"{self.username}:{self.password.get_secret_value()}"
            return base64.b64encode(credentials.encode()).decode()
        if self.raw_api_key:
            return self.raw_api_key.get_secret_value()
        return ""

    @model_validator(mode='after')
    def validate_auth_config(self) -> 'AuthConfig':
        """Validate that required fields are present for the selected auth type."""
        t = self.type
        if t == "basic" and not (self.username and self.password):
            raise ValueError("Basic auth requires 'username' and 'password'")
        if t in ("bearer", "x-api-key") and not self.raw_api_key:
            raise ValueError(f"{t} requires 'raw_api_key'")
        if t == "custom" and not (self.header_name and self.raw_api_key):
            raise ValueError(f"{t} requires 'header_name' and 'raw_api_key'")
        return self


def resolve(
    arg: Any,
    env_keys: Union[str, List[str]],
    default: Any
) -> Any:
    """
    Resolve configuration value from multiple sources in priority order:
    1. Direct argument (if not None)
    2. Environment variables
    3. Default value
    """
    if arg is not None:
        return arg

    if isinstance(env_keys, str):
        env_keys = [env_keys]

    for key in env_keys:
        val = os.getenv(key)
        if val is not None:
            return val

    return default


def resolve_bool(arg: Any, env_keys: Union[str, List[str]], default: Optional[bool]) -> Optional[bool]:
    """Resolve boolean value with string conversion support."""
    val = resolve(arg, env_keys, default)
    if val is None or isinstance(val, bool):
        return val
    if isinstance(val, str):
        return val.lower() in ("true", "1", "yes", "on")
    return bool(val)


def resolve_int(arg: Any, env_keys: Union[str, List[str]], default: int) -> int:
    """Resolve integer value."""
    val = resolve(arg, env_keys, default)
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def resolve_config(config: Optional[Union[BuilderConfig, Dict[str, Any]]] = None) -> BuilderConfig:
    """
    Apply environment overrides and defaults.
    Fields set explicitly on the given config win over the environment.
    """
    if isinstance(config, BuilderConfig):
        explicit = config.model_dump(exclude_unset=True)
    else:
        explicit = dict(config or {})

    return BuilderConfig(
        method=str(resolve(explicit.get("method"), ENV_METHOD, DEFAULT_METHOD)).upper(),
        use_raw_url=bool(resolve_bool(explicit.get("use_raw_url"), ENV_USE_RAW_URL, False)),
        request_timeout_in_ms=max(resolve_int(explicit.get("request_timeout_in_ms"), ENV_TIMEOUT_MS, 0), 0),
        follow_redirects=resolve_bool(explicit.get("follow_redirects"), ENV_FOLLOW_REDIRECTS, None),
    )
