"""
API server package: HTTP interface over the analysis pipeline.

Classifies addresses, authenticates bearer tokens, and delegates to the
orchestrator; contains no cost-basis logic.
"""
