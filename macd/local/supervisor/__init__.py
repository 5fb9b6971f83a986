"""
The Supervisor package.
Manages the lifecycle of the supervised child processes.

This package contains the central ProcessManager class and its helper modules,
which together handle launching, polling, sampling, reporting on and
terminating every configured program.
"""
from .process_utils import SupervisorError
from .records import ProcessRecord, ProcessSpec, ProcessState, ProcessTable
from .supervisor import ProcessManager

__all__ = ['ProcessManager', 'ProcessRecord', 'ProcessSpec', 'ProcessState', 'ProcessTable', 'SupervisorError']
