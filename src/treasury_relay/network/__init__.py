"""Endpoint selection and the committed connection."""

from treasury_relay.network.connection import Connection
from treasury_relay.network.selector import EndpointSelector, SelectedEndpoint

__all__ = ["Connection", "EndpointSelector", "SelectedEndpoint"]
