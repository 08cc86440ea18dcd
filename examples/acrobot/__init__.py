from .problem_definition import Acrobot
