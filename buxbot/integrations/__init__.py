"""
Clients for the Solana RPC and the Discord REST API.
"""
