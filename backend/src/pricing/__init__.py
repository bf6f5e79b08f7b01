"""Tier pricing: normalization, resolution, the price ledger and the replace workflow.

Import the submodules directly (pricing.orchestrator, pricing.resolver, ...);
the payments package depends on pricing.errors, so this package keeps no
eager imports.
"""
