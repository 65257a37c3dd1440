#!/usr/bin/env python3

from setuptools import setup, find_packages

deps = [
	'aiomqtt>=2.0.0',
]

tests_require = [
	'pytest',
	'pytest-asyncio',
	'parameterized',
]

setup(
	name="lutronbridge",
	version="0.1",
	description="Bridge between a Lutron RadioRA2 gateway's integration protocol and MQTT.",
	license="LGPL3+",
	python_requires='>=3.10',
	install_requires=deps,
	tests_require=tests_require,
	extras_require={'test': tests_require},
	packages=find_packages(exclude=['tests', 'tests.*']),

	entry_points={
		'console_scripts': [
			'lutrond = lutronbridge.daemon.lutrond:main',
			'lutron_simulator = lutronbridge.simulator.run_simulator:cli',
		]
	},

	classifiers=[
		'Framework :: AsyncIO',
		'License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)',
		'Programming Language :: Python :: 3',
	],
)
