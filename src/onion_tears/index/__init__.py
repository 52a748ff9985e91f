"""Parsing and per-function complexity analysis."""

from onion_tears.index.complexity import (
    ComplexityContributor,
    ComplexityResult,
    FileComplexityResult,
    FunctionComplexityResult,
    ThresholdStatus,
    analyze,
    analyze_file,
    calculate_cognitive_complexity,
    calculate_cyclomatic_complexity,
)
from onion_tears.index.functions import find_function, iter_functions, parse_function_name
from onion_tears.index.parser import SourceTree, parse_file, parse_source

__all__ = [
    "ComplexityContributor",
    "ComplexityResult",
    "FileComplexityResult",
    "FunctionComplexityResult",
    "ThresholdStatus",
    "analyze",
    "analyze_file",
    "calculate_cognitive_complexity",
    "calculate_cyclomatic_complexity",
    "find_function",
    "iter_functions",
    "parse_function_name",
    "SourceTree",
    "parse_file",
    "parse_source",
]
