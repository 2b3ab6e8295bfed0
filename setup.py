from setuptools import setup, find_packages

exec(open('bigbatch_sgd/version.py').read())


dependencies = [
    'numpy',
    'scipy',
    'matplotlib',
]

setup(
    name='bigbatch-sgd',
    version=__version__,
    description='Python implementation of big batch SGD with adaptive stepsizes',
    packages=find_packages(include=['bigbatch_sgd', 'bigbatch_sgd.*']),
    install_requires=dependencies,
    extras_require={'tests': ['pytest']},
)
