"""
Hack VM SDK Command-Line Interface
==================================

This package provides command-line tools for the Hack VM SDK:

- **hackvm**: VM to Hack assembly translator
- **hackasm**: Hack assembler

Each tool is implemented as a Click-based CLI application with
help text and consistent exit codes.
"""

__all__ = ["hackvm", "hackasm"]
