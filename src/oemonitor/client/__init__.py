"""oemanager REST client."""

from oemonitor.client.oemanager import OeManagerClient, unwrap_list

__all__ = ["OeManagerClient", "unwrap_list"]
