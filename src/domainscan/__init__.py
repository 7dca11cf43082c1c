"""FreeDNS registry scanner with HTTP(S) reachability probing."""

__version__ = "0.1.0"
