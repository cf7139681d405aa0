from setuptools import setup, find_packages
import os
from glob import glob

package_name = 'robot_trajectory_action'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['tests']),
    data_files=[
        ('share/ament_index/resource_index/packages',
            ['resource/' + package_name]),
        ('share/' + package_name, ['package.xml']),
        (os.path.join('share', package_name, 'launch'),
            glob('launch/*.py')),
        (os.path.join('share', package_name, 'config'),
            glob('config/*.yaml')),
    ],
    install_requires=['setuptools', 'PyYAML'],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='Robot Team',
    maintainer_email='robot@example.com',
    description='Multi-group joint trajectory action server - INTERFACE ADAPTER, NO CONTROL AUTHORITY',
    license='MIT',
    tests_require=['pytest'],
    entry_points={
        'console_scripts': [
            'trajectory_action = robot_trajectory_action.action_node:main',
            'trajectory_action_sim = robot_trajectory_action.simulator:main',
        ],
    },
)
