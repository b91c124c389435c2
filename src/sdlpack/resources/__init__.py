"""Bundled data files for sdlpack."""
