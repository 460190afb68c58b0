"""OpenSocial Data Pipeline - Configuration

Module constants shared by the pipeline, plus the YAML loader for
per-session settings.

Config example (pipeline.yaml):
    namespaces:
      myapp: "http://example.com/myapp"
    handlers:
      rpc:
        endpoint: "https://container.example.com/rpc"
        security_token: "st-abc"
      http:
        timeout: 10
    datasets:
      greeting: "Hello"
    view_params:
      page: 2
"""

import logging
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------

# Attribute that names the dataset a request populates
ATTR_KEY = "key"

# <script type="..."> blocks that carry data pipeline markup
SCRIPT_TYPE = "text/os-data"

# Wrapper element whose key is inherited by the requests nested inside it
DATASET_TAG = "os:DataSet"

OS_NAMESPACE = "http://ns.opensocial.org/2008/markup"

DEFAULT_NAMESPACES = {
    "os": OS_NAMESPACE,
}

# Prefixes registered without an explicit URI get "<base><prefix>"
SYNTHETIC_NAMESPACE_BASE = "urn:opensocial:data:"

# XHTML entities allowed inside XML fragments, in DOCTYPE form
ENTITIES = '<!ENTITY nbsp "&#160;">'

# ---------------------------------------------------------------------------
# Data context
# ---------------------------------------------------------------------------

WILDCARD_KEY = "*"

# Dataset pre-populated from the gadget's view parameters
VIEW_PARAMS_KEY = "ViewParams"

# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

HTTP_TIMEOUT = 10        # seconds, os:HttpRequest
RPC_TIMEOUT = 15         # seconds, batched social API call
USER_AGENT = "OSDataPipeline/1.0"


def load_config(path: str) -> Dict[str, Any]:
    """Load pipeline config from a YAML file.

    Returns an empty dict when the file does not exist or is empty.
    """
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file not found: %s", path)
        return {}
