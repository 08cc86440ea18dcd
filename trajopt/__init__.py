"""
`trajopt` transcribes continuous-time optimal control problems into
finite-dimensional nonlinear programs, solves them, and refines the solutions
on finer grids.

---

* [`problem`](trajopt/problem):
    Base class for trajectory optimization problems and the parameter
    container shared with every solver component.

* [`collocation`](trajopt/collocation):
    Chebyshev pseudospectral and multiple shooting transcriptions, warm
    starting, mesh refinement, and continuous-time solution interpolants.

* [`simulate`](trajopt/simulate):
    Fixed step Runge-Kutta integration and open-loop simulation of solutions.

* [`animate`](trajopt/animate):
    Real-time playback of solved trajectories with keyboard controls.

* [`export`](trajopt/export):
    Flatten nested parameter sets into a vector and C++ header files.

* [`utilities`](trajopt/utilities):
    Input checking, saturation, and csv data storage.
"""

__version__ = '0.1.0'
