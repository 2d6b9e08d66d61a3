from setuptools import setup, find_namespace_packages

setup(
    name='iamlab',
    version='0.1',
    py_modules=['iamlab'],
    packages=find_namespace_packages(include=['modules', 'modules.*']),
    install_requires=[
        'Click>=8.2',
        'python-hcl2',
        'requests'
    ],
    extras_require={
        'test': ['pytest']
    },
    entry_points='''
        [console_scripts]
        iamlab=iamlab:cli
    ''',
)
