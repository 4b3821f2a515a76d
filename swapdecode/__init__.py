"""Decode Pump AMM, Pump.fun and Raydium events from Solana transaction updates."""

__version__ = "0.1.0"

__all__ = ["core", "instruction_parser", "monitor", "pump_amm", "pumpfun", "raydium", "types", "utils"]