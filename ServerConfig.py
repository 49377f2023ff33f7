# ServerConfig.py
import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

DEFAULT_PROPERTIES_FILE = "http.properties"

# key ends at the first '=', ':' or whitespace
_PROPERTY_LINE = re.compile(r"([^=:\s]+)\s*[=:\s]\s*(.*)")


class ServerConfig(BaseModel):
    """Host/port the banlist server binds to. Both optional."""
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=0, le=65535)


def parse_properties(text: str) -> dict:
    """
    Parse the simple subset of Java .properties used by http.properties:
    `key=value`, `key: value` or `key value`, with `#`/`!` comment lines.
    """
    props = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        m = _PROPERTY_LINE.match(line)
        if m:
            props[m.group(1)] = m.group(2).strip()
        else:
            props[line] = ""
    return props


def load_config(path=DEFAULT_PROPERTIES_FILE) -> ServerConfig:
    """
    Build a ServerConfig from a properties file. A missing file is fine and
    gives the defaults; a non-integer port raises pydantic.ValidationError.
    """
    p = Path(path)
    if not p.is_file():
        log.debug("No properties file at %s, using defaults", p)
        return ServerConfig()

    # .properties files are ISO-8859-1, so any byte decodes
    props = parse_properties(p.read_text(encoding="latin-1"))
    known = {k: props[k] for k in ("host", "port") if k in props}
    log.debug("Loaded %s from %s", known, p)
    return ServerConfig(**known)
