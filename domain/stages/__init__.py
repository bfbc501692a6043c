from domain.stages.base import Action, Stage, StageClass
from domain.stages.command import CommandAction
from domain.stages.http import HttpAction
from domain.stages.file import FileAction, FILE_OPERATIONS
from domain.stages.poll import PollAction
from domain.stages.client import ClientProvisionAction

__all__ = [
    "Action",
    "Stage",
    "StageClass",
    "CommandAction",
    "HttpAction",
    "FileAction",
    "FILE_OPERATIONS",
    "PollAction",
    "ClientProvisionAction",
]
