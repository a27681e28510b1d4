"""hookpool: a self-replenishing pool of Discord webhooks with paced dispatch.

  - Discovers existing webhooks in every text channel of one guild
  - Creates missing ones in rate-spread bursts up to a per-channel target
  - Runs one independent, randomly paced send loop per webhook
  - Honours 429 retry hints and retires webhooks that return 401/404
  - Writes the live webhook URLs to a file after every pass
"""

__version__ = "0.1.0"
__description__ = "Self-replenishing Discord webhook pool with paced dispatch"

from hookpool.core.driver import ReconciliationDriver
from hookpool.core.registry import EndpointRegistry
from hookpool.cli.app import app as cli

__all__ = ["ReconciliationDriver", "EndpointRegistry", "cli", "__version__"]
