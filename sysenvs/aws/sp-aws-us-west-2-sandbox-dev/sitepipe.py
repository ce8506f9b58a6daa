# This file is boilerplate. Copy it to any new sysenv you create.
# It calls the launcher that ships with `infra_sitepipe`; the module to run is taken from the stack name,
# so the `static-site` stack runs the `static_site` module.
from infra_sitepipe.launcher import run_active_stack

run_active_stack("aws")
