"""Setup script"""

from setuptools import setup

setup(
    name='vmbackupcli',
    version='0.1.0',
    packages=['vmbackupcli'],
    description="Backup, list, prune and restore Azure VM disks via blob copies",
    author="Dr. Christian Geuer-Pollmann",
    author_email='chgeuer@microsoft.com',
    entry_points={
        'console_scripts': [
            'vmbackupcli = vmbackupcli.__main__:main'
        ]
    },
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=[
        'pid>=3.0.0',
        'azure-identity>=1.10.0',
        'azure-storage-blob>=12.13.0',
        'azure-mgmt-compute>=27.0.0',
        'azure-mgmt-network>=20.0.0'
    ],
    extras_require={
        'test': ['mock', 'pytest']
    },
    tests_require=[
        'mock'
    ])
