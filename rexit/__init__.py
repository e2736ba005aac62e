"""rexit: a TUI power menu for Linux, optimized for Hyprland."""

__version__ = "0.3.0"
__author__ = "Ninso112"
