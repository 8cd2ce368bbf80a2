from .cli import kafprobe as kafprobe, main as main
