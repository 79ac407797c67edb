"""
Command groups for the CryptoPulse CLI
"""
