"""Contracts for data handed to services outside the orchestrator."""

from tripflow.shared.contracts.search_request import SearchRequestV1

__all__ = ["SearchRequestV1"]
