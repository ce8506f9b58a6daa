ARTIFACT_BUCKET_PREFIX = "codepipeline-{region}-"
"""
Naming convention of the artifact buckets CodePipeline provisions for itself. Their exact names are unknown until the
service creates them, so grants are scoped to this prefix.
"""

ARTIFACT_BUCKETS = "arn:{partition}:s3:::" + ARTIFACT_BUCKET_PREFIX + "*"
"""Every artifact bucket in the region"""

ARTIFACT_OBJECTS = ARTIFACT_BUCKETS + "/*"
"""Every object in every artifact bucket in the region"""
