"""
sb0-installer: installs the sb0 CLI binary, its wheels and its templates from
GitHub releases.
"""
