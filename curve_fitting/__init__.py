"""Curve Fitting: piecewise Bézier fitting of 2D sample points.

Fits an ordered sequence of sample points with line, quadratic and cubic
Bézier segments, either straight through or one checkpoint at a time so a
driver can inspect the algorithm's intermediate state.

Subpackages (strict one-way dependency):
    scripts/ → fitting/ → {coroutine, configs}/ → utils/

    coroutine: Driver/worker hand-off used by the steppable engine
    fitting: Parametrization, least squares, engines, path types
    configs: Fitting configuration loading and validation
    utils: Logging, YAML loading, input file validation
"""

__version__ = "1.0.0"

__all__ = ["coroutine", "fitting", "configs", "utils", "scripts"]
