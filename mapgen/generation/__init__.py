"""
Map Generator - Generation Package
Contains all generation passes and the pipeline that runs them.
"""

from mapgen.generation.pipeline import GenerationPipeline, create_pipeline

__all__ = [
    "GenerationPipeline",
    "create_pipeline",
]
