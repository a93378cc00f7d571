from setuptools import setup, find_packages

setup(
    name='mensurlab',
    version='1.0',
    description='Input impedance of wind instrument bores',
    license='GNU GENERAL PUBLIC LICENSE v2',
    package_dir={"": "src"},
    packages=find_packages("src", include=["mensurlab", "mensurlab.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "scipy",
        "pandas",
        "configargparse",
        "matplotlib",
        "tqdm",
        "sympy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["mensurlab=mensurlab.__main__:main"],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
    ],
)
