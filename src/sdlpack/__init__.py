"""sdlpack - SDL2 native library build and NuGet redistributable packager."""

__version__ = "0.1.0"
