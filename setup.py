from setuptools import find_packages, setup

setup(
  name = 'mobsentry',
  packages = find_packages(where='src'),
  package_dir = {'': 'src'},
  version = '1.0.0',
  license='GNU',
  description = 'static security analysis for React Native and mobile app source trees',
  keywords = ['security', 'static-analysis', 'react-native', 'mobile'],
  python_requires='>=3.10',
  install_requires=[
"pydantic>=2.0",
"pydantic-settings>=2.0",
"PyYAML>=6.0",
"rich>=13.0",
"tomli>=2.0; python_version < '3.11'",
"typer>=0.9",
      ],
  extras_require={
    'test': [
      "pytest>=7.0",
      "pytest-asyncio>=0.21",
    ],
  },
  entry_points={
    'console_scripts': [
      'mobsentry=mobsentry.cli.main:app',
    ],
  },
  classifiers=[
    'Development Status :: 4 - Beta',
    'Intended Audience :: Developers',
    'Topic :: Security',
    'License :: OSI Approved :: GNU General Public License (GPL)',
    'Programming Language :: Python :: 3',
    'Programming Language :: Python :: 3.10',
    'Programming Language :: Python :: 3.11',
    'Programming Language :: Python :: 3.12',
  ],
)
