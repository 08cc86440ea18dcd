from .problem_definition import CartPole
