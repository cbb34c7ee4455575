"""Read and edit Mindustry's binary ``settings.bin`` file."""

__version__ = "0.1.0"
