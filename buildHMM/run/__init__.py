from .args import parse_args
from .args_to_config import args_to_config
from .console import run_main
