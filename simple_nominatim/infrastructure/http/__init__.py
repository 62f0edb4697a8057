"""HTTP adapters implementing the Transport interface."""
