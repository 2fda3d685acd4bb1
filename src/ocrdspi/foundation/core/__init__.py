"""Core checks shared by all tools."""

from .premise import Premise, PremiseState, command_premise, executable_premise, resources_premise

__all__ = ["Premise", "PremiseState", "command_premise", "executable_premise", "resources_premise"]
