"""Application layer: DTOs, ports and the follow graph service.

No runtime imports from followgraph.infrastructure.
"""
