from infra_sitepipe.lib.graph.types import Reference

WEBSITE_SCHEME = "http://"
"""S3 website endpoints only serve plain HTTP"""


def website_url(website_configuration: str) -> Reference:
    """
    Reference onto the public URL of a bucket's website endpoint

    :param website_configuration: Logical name of the website configuration resource
    :return: Reference resolving to ``http://<bucket>.s3-website-<region>.amazonaws.com``
    """
    return Reference(website_configuration, "website_endpoint", prefix=WEBSITE_SCHEME)
