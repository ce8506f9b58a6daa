from .kebab_from_snake import kebab_from_snake
from .outputs_from_exports import outputs_from_exports, to_outputs
from .run_once import run_once
