"""
Command line interface: `poolvisor run | reload | stop`.
"""

from .cli import main
from .output import BufferedOutput, ConsoleOutput, OutputWriter

__all__ = ["BufferedOutput", "ConsoleOutput", "OutputWriter", "main"]
