import os


fromb . import two
