from runner.src.pipelines.compose_deploy import (
    PIPELINE_NAME,
    build_compose_pipeline,
    deploy_parameters,
)
from runner.src.pipelines.declarative import build_pipeline, load_pipeline

__all__ = [
    "PIPELINE_NAME",
    "build_compose_pipeline",
    "deploy_parameters",
    "build_pipeline",
    "load_pipeline",
]
