# =============================================================================
# EVMOS UPGRADE HELPER - TEST SUITE
# =============================================================================
#
# Structure:
#   tests/
#     fakes.py        - In-memory collaborators
#     unit/           - Core, clients, shared
#     integration/    - Assembler, command generator, storage, CLI
#
# Usage:
#   pytest                      # All tests
#   pytest tests/unit           # Unit tests only
#
# No test touches the network or the real evmosd binary.
#
# =============================================================================
