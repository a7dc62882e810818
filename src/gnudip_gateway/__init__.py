"""
GnuDIP Gateway - A GnuDIP-compatible dynamic DNS update endpoint.

This package authenticates DDNS clients with the GnuDIP challenge-response
scheme (salt, timestamp and keyed signature) and forwards the requested
address to a DNS provider (Vultr, CloudFlare, Alibaba Cloud DNS, Tencent
Cloud DNSPod).
"""

__version__ = "0.1.0"
__author__ = "GnuDIP Gateway Contributors"
