# =============================================================================
# EVMOS UPGRADE HELPER - PROPOSAL ARTIFACTS
# =============================================================================
#
# ARCHITECTURE:
#   ProposalAssembler -> ProposalDocument -> proposal .md + upgrade config .json
#   CommandGenerator  -> SubmissionCommand -> .sh script
#
# Assembler and generator never write files; storage does.
#
# =============================================================================

from proposals.assembler import ProposalAssembler
from proposals.command_generator import CommandGenerator, choose_by_name, first_candidate
from proposals.renderer import TemplateRenderer
from proposals.storage import FileWriter, find_config, read_config, validate_config, write_config

__all__ = [
    "ProposalAssembler",
    "CommandGenerator",
    "choose_by_name",
    "first_candidate",
    "TemplateRenderer",
    "FileWriter",
    "find_config",
    "read_config",
    "validate_config",
    "write_config",
]
