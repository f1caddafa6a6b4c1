"""JSON-RPC access to the network."""

from treasury_relay.rpc.client import JsonRpcClient, hex_to_int

__all__ = ["JsonRpcClient", "hex_to_int"]
