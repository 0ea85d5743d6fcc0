from setuptools import setup, find_packages

setup(
    name="pose_fusion",
    version="0.1.0",
    description="Latency-compensated odometry and vision pose fusion for wheeled robots",
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "scipy",
    ],
    extras_require={
        "dev": [
            "pytest",
            "flake8",
            "black",
        ]
    }
)
