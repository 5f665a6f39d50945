from setuptools import setup, find_packages

with open('requirements.txt', encoding='utf-8') as freq:
    requirements = freq.readlines()

setup_args = {}

setup_args['name']                 = "faas_cli"
setup_args['version']              = "0.1.0"
setup_args['package_dir']          = {'': 'src'}
setup_args['packages']             = find_packages(where='src')
setup_args['python_requires']      = '>=3.9'
setup_args['install_requires']     = requirements
setup_args['extras_require']       = {'test': ['pytest']}
setup_args['entry_points']         = {'console_scripts': ['faas-cli = faas_cli.commands.cli:main']}

setup(**setup_args)
