# Bot configuration - JSON file under <workdir>/config with env fallback
import json
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from incidentbot.core.errors import ConfigError
from incidentbot.core.nag import DEFAULT_IDLE_THRESHOLD, DEFAULT_NAG_INTERVAL

CONFIG_REL = "config/incidentbot.json"
TOKEN_ENV = "INCIDENTBOT_TOKEN"

# roles double as chat command names
ROLE_NAME_RE = re.compile(r"^[a-z0-9_]{1,32}$")

DEFAULT_ROLES = ["commander", "communications", "planning", "operations"]
DEFAULT_COLLAB_LINK_TEMPLATE = "https://meet.example.com/incident-{slug}"


@dataclass
class BotConfig:
    bot_token: str = ""
    roles: List[str] = field(default_factory=lambda: list(DEFAULT_ROLES))
    nag_interval: float = DEFAULT_NAG_INTERVAL
    idle_threshold: float = DEFAULT_IDLE_THRESHOLD
    collab_link_template: str = DEFAULT_COLLAB_LINK_TEMPLATE

    def validate(self) -> "BotConfig":
        if not self.roles:
            raise ConfigError("at least one role must be configured")
        for role in self.roles:
            if not ROLE_NAME_RE.match(role):
                raise ConfigError(
                    f"invalid role name {role!r}: use lowercase letters, digits and _"
                )
        if len(set(self.roles)) != len(self.roles):
            raise ConfigError(f"duplicate role names: {self.roles}")
        if self.nag_interval <= 0:
            raise ConfigError("nag_interval must be positive")
        if self.idle_threshold <= 0:
            raise ConfigError("idle_threshold must be positive")
        if "{slug}" not in self.collab_link_template:
            raise ConfigError("collab_link_template must contain {slug}")
        try:
            self.collab_link_template.format(slug="probe")
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigError(f"invalid collab_link_template: {e}") from e
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BotConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        try:
            cfg = cls(**known)
            cfg.roles = [str(r).strip() for r in cfg.roles]
            cfg.nag_interval = float(cfg.nag_interval)
            cfg.idle_threshold = float(cfg.idle_threshold)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid config value: {e}") from e
        return cfg.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def config_path(workdir: Path) -> Path:
    return (workdir / CONFIG_REL).resolve()


def load_config(workdir: Path, token: Optional[str] = None) -> BotConfig:
    """Load config from the workdir, falling back to defaults.

    The bot token is taken from `token`, then the file, then $INCIDENTBOT_TOKEN.
    """
    cfg_path = config_path(workdir)
    data: Dict[str, Any] = {}
    if cfg_path.exists():
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except Exception as e:
            raise ConfigError(f"invalid config JSON: {cfg_path} ({e})") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config must be a JSON object: {cfg_path}")

    cfg = BotConfig.from_dict(data)
    cfg.bot_token = (
        (token or "").strip()
        or (cfg.bot_token or "").strip()
        or os.environ.get(TOKEN_ENV, "").strip()
    )
    return cfg


def save_config(workdir: Path, cfg: BotConfig) -> Path:
    cfg_path = config_path(workdir)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = cfg_path.with_suffix(".tmp")
    tmp.write_text(
        json.dumps(cfg.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8"
    )
    os.replace(tmp, cfg_path)
    try:
        os.chmod(cfg_path, 0o600)
    except OSError:
        pass
    return cfg_path
