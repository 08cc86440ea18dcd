import setuptools

from trajopt import __version__


with open('README.md', 'r') as fh:
    long_description = fh.read()

with open('requirements.txt', 'r') as fh:
    requirements = fh.read().splitlines()

if __name__ == '__main__':
    setuptools.setup(
        name='trajopt',
        version=__version__,
        description=("Chebyshev pseudospectral and multiple shooting "
                     "trajectory optimization"),
        long_description=long_description,
        long_description_content_type='text/markdown',
        packages=setuptools.find_packages(include=['trajopt', 'trajopt.*']),
        python_requires='>=3.8',
        install_requires=requirements,
        extras_require={'test': ['pytest']})
