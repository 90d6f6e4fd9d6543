from setuptools import setup

setup(
    name='weighted-adaboost-trees',
    version='1.0',
    py_modules=[
        'adaboost_trainer',
        'classifier',
        'errors',
        'record_table',
        'records',
        'split_evaluator',
        'tree_builder',
        'weighted_sampler',
    ],
    description='Weighted decision-tree induction and AdaBoost.M1 boosting',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.8',
    install_requires=['numpy'],
    extras_require={'test': ['pytest']},
)
