from .artifacts import ARTIFACT_BUCKET_PREFIX, ARTIFACT_BUCKETS, ARTIFACT_OBJECTS
from .codebuild import (
    BUILD_REQUIRED_ACTIONS,
    BUILD_TRUSTED_SERVICE,
    build_log_group_name,
    generate_build_identity,
    generate_build_requirements,
)
from .codepipeline import (
    PIPELINE_REQUIRED_ACTIONS,
    PIPELINE_TRUSTED_SERVICE,
    generate_pipeline_identity,
    generate_pipeline_requirements,
)
from .s3_website import generate_public_read_policy
