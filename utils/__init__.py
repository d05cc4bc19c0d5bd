# Utility functions
from .resources import parse_quantity, parse_cpu, parse_memory
from .k8s import workload_from_v1_pod

__all__ = [
    'parse_quantity', 'parse_cpu', 'parse_memory',
    'workload_from_v1_pod',
]
