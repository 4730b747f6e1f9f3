import setuptools

with open("README.rst", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="shapeopt",
    version="1.0.0",
    author="The shapeopt developers",
    description="Gradient Based Shape Optimization with Boundary, Design Element "
    "and Free-Form Deformation Parametrizations",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    packages=setuptools.find_packages(include=["shapeopt", "shapeopt.*"]),
    classifiers=[
        "Topic :: Scientific/Engineering",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Operating System :: OS Independent",
    ],
    keywords="Shape Optimization, Free-Form Deformation, Design Element Method",
    install_requires=[
        "meshio>=5.0.0",
        "numpy>=1.21",
        "scipy>=1.7",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["shapeopt-convert = shapeopt._cli:convert"]},
    python_requires=">=3.8",
)
