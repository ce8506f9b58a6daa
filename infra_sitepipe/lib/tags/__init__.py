from ..config import (
    get_tag_prefix,
    get_team,
    get_sysenv,
    get_stack,
    get_project,
    get_purpose,
    get_phase,
)


def get_tags(service, role, group=None) -> dict:
    """
    Generate tag dict for resources

    example tags:
      static site bucket:
        Name = static-site-bucket-docs
               service-role-group
        sitepipe:sysenv = sp-aws-us-west-2-sandbox-dev
        sitepipe:service = static-site
        sitepipe:role = bucket
        sitepipe:group = docs
        sitepipe:createdby = pulumi
        sitepipe:team = web
        sitepipe:project = sitepipe
        sitepipe:stack = static-site
        sitepipe:purpose = sandbox
        sitepipe:phase = dev

      build role:
        Name = static-site-build-role-docs
        sitepipe:service = static-site
        sitepipe:role = build-role
        sitepipe:group = docs
        ...

    :param service: This resource's "namespace" (static-site, ...)
    :param role: The role this resource performs within the namespace (bucket, build-role, pipeline,...)
    :param group: The group this resource belongs to (usually the site name). Leave unset to use "main".
    :return: Dict of tags
    """

    group_name = "main" if not group else group
    group_suffix = f"-{group}" if group else ""
    tag_prefix = get_tag_prefix()

    return {
        "Name": f"{service}-{role}{group_suffix}",
        f"{tag_prefix}sysenv": get_sysenv(),
        f"{tag_prefix}service": service,
        f"{tag_prefix}role": role,
        f"{tag_prefix}group": group_name,
        f"{tag_prefix}team": get_team(),
        f"{tag_prefix}createdby": "pulumi",
        f"{tag_prefix}stack": get_stack(),
        f"{tag_prefix}project": get_project(),
        f"{tag_prefix}purpose": get_purpose(),
        f"{tag_prefix}phase": get_phase(),
    }
