###############################################################################
# Settings for every sitemap in a workspace, stored in one JSON file keyed by
# the sitemap's workspace-relative path. Missing keys are filled with defaults
# in memory only; a corrupted file is logged and treated as empty.
###############################################################################

import copy
import json
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Optional
from errors import AmbiguousSelectionError, ConfigParseError, SitemapNotFoundError
from logger_config import get_logger

SETTINGS_FILENAME = "sitemap-generator.json"

CHANGE_FREQUENCIES = ("always", "hourly", "daily", "weekly", "monthly", "yearly", "never")
SITEMAP_TAGS = ("loc", "priority", "changefreq", "lastmod")

DEFAULT_SETTINGS = {
    "Protocol": "http",
    "DomainName": "example.com",
    "Root": "./",
    "IncludeExt": [".html", ".php"],
    "Exclude": [],
    "IncludeWWW": True,
    "RemoveFileExtensions": False,
    "UseTrailingSlash": False,
    "Minimized": False,
    "TabCharacters": "\t",
    "DefaultChangeFrequency": None,
    "TagsToInclude": list(SITEMAP_TAGS),
    "AutomaticallyUpdateSitemap": True,
}

# JSON key -> SitemapSettings attribute
SETTING_KEYS = {
    "Protocol": "protocol",
    "DomainName": "domain_name",
    "Root": "root",
    "IncludeExt": "include_ext",
    "Exclude": "exclude",
    "IncludeWWW": "include_www",
    "RemoveFileExtensions": "remove_file_extensions",
    "UseTrailingSlash": "use_trailing_slash",
    "Minimized": "minimized",
    "TabCharacters": "tab_characters",
    "DefaultChangeFrequency": "default_change_frequency",
    "TagsToInclude": "tags_to_include",
    "AutomaticallyUpdateSitemap": "automatically_update_sitemap",
}

logger = get_logger(__name__)

@dataclass
class SitemapSettings:
    protocol: str = "http"
    domain_name: str = "example.com"
    root: str = ""
    include_ext: List[str] = field(default_factory=lambda: [".html", ".php"])
    exclude: List[str] = field(default_factory=list)
    include_www: bool = True
    remove_file_extensions: bool = False
    use_trailing_slash: bool = False
    minimized: bool = False
    tab_characters: str = "\t"
    default_change_frequency: Optional[str] = None
    tags_to_include: List[str] = field(default_factory=lambda: list(SITEMAP_TAGS))
    automatically_update_sitemap: bool = True

    def __post_init__(self):
        self.root = normalize_root(self.root)

    def exclude_patterns(self) -> List["re.Pattern"]:
        return [re.compile(pattern) for pattern in self.exclude]

    @classmethod
    def from_dict(cls, data: dict) -> "SitemapSettings":
        """
        Build settings from a stored JSON object. Missing or null keys get
        their default; a value of the wrong type raises ConfigParseError.
        """
        values = {}
        for key, default in DEFAULT_SETTINGS.items():
            value = data.get(key)
            if value is None:
                value = default
            else:
                _check_type(key, value)
            values[key] = copy.deepcopy(value)

        for pattern in values["Exclude"]:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigParseError(f"Invalid exclude pattern {pattern!r}: {e}") from e

        frequency = values["DefaultChangeFrequency"]
        if frequency is not None and frequency not in CHANGE_FREQUENCIES:
            logger.warning(f"Ignoring unknown DefaultChangeFrequency {frequency!r}")
            values["DefaultChangeFrequency"] = None

        return cls(**{SETTING_KEYS[key]: value for key, value in values.items()})

    def to_dict(self) -> dict:
        data = asdict(self)
        return {key: data[attribute] for key, attribute in SETTING_KEYS.items()}

def _check_type(key: str, value):
    default = DEFAULT_SETTINGS[key]
    if isinstance(default, bool):
        valid = isinstance(value, bool)
        expected = "true or false"
    elif isinstance(default, list):
        valid = isinstance(value, list) and all(isinstance(item, str) for item in value)
        expected = "a list of strings"
    else:
        # str settings, DefaultChangeFrequency included
        valid = isinstance(value, str)
        expected = "a string"
    if not valid:
        raise ConfigParseError(f"{key} must be {expected}, got {value!r}")

def normalize_root(root: str) -> str:
    """Strip './' and '/' prefixes so the root can be joined onto the workspace."""
    root = (root or "").replace("\\", "/")
    while root.startswith("./"):
        root = root[2:]
    root = root.lstrip("/")
    if root == ".":
        root = ""
    return root

def is_settings_file(file_path, settings_path: Path) -> bool:
    return Path(file_path).resolve() == Path(settings_path).resolve()

def read_settings_file(settings_path: Path) -> dict:
    """Parse the raw settings file. Raises ConfigParseError if it isn't a JSON object."""
    if not settings_path.exists():
        return {}
    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, ValueError) as e:
        raise ConfigParseError(f"Invalid {settings_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigParseError(f"Invalid {settings_path}: expected an object keyed by sitemap path")
    return data

def load_settings(settings_path: Path) -> Dict[str, SitemapSettings]:
    """Load a snapshot of every configured sitemap's settings."""
    try:
        data = read_settings_file(settings_path)
    except ConfigParseError as e:
        logger.error(f"{e}. Using an empty configuration.")
        return {}

    snapshot = {}
    for sitemap, values in data.items():
        if not isinstance(values, dict):
            logger.error(f"Settings for {sitemap} in {settings_path} are not an object, skipping")
            continue
        try:
            snapshot[sitemap] = SitemapSettings.from_dict(values)
        except ConfigParseError as e:
            logger.error(f"Skipping {sitemap}: {e}")
    return snapshot

def get_sitemap_settings(sitemap: str, snapshot: Dict[str, SitemapSettings]) -> SitemapSettings:
    """Settings for one sitemap, or the defaults if it isn't configured."""
    return snapshot.get(sitemap) or SitemapSettings()

def set_sitemap_setting(settings_path: Path, sitemap: str, **values):
    """Update stored values for a sitemap, e.g. set_sitemap_setting(path, "sitemap.xml", Protocol="https")."""
    data = read_settings_file(settings_path)
    if not isinstance(data.get(sitemap), dict):
        data[sitemap] = dict(DEFAULT_SETTINGS)
    data[sitemap].update(values)

    settings_path.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info(f"Settings for {sitemap} saved to {settings_path}")

def select_sitemap(snapshot: Dict[str, SitemapSettings], sitemap: Optional[str] = None) -> str:
    """Resolve which sitemap a command applies to."""
    if sitemap is not None:
        if sitemap not in snapshot:
            raise SitemapNotFoundError(f"No settings found for sitemap {sitemap}")
        return sitemap
    if not snapshot:
        raise SitemapNotFoundError("No sitemap configured")
    if len(snapshot) > 1:
        raise AmbiguousSelectionError(sorted(snapshot))
    return next(iter(snapshot))
