from .problem_definition import ThreeBody, FIGURE_EIGHT_PERIOD
