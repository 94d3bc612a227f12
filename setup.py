import codecs
from setuptools import setup, find_namespace_packages

TESTS_REQUIRE = [
    'coverage',  # Test coverage
    'pyhamcrest >= 2.0.3',
    'zope.testing >= 4.1.2',
    'zope.testrunner',
    'nti.testing',
]


def _read(fname):
    with codecs.open(fname, encoding='utf-8') as f:
        return f.read()


setup(
    name='nti.accessmanager',
    version=_read('version.txt').strip(),
    author='Jason Madden',
    author_email='jason@nextthought.com',
    description='NextThought privilege aggregation and access control entry management',
    long_description=(_read('README.rst') + '\n\n' + _read('CHANGES.rst')),
    license='Apache',
    keywords='security privileges acl zope',
    classifiers=[
        'Intended Audience :: Developers',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Framework :: Zope :: 3',
        "Development Status :: 4 - Beta",
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: Implementation :: CPython',
        'Topic :: Security',
    ],
    url="https://github.com/NextThought/nti.accessmanager",
    # Support unit tests of package
    tests_require=TESTS_REQUIRE,  # Needed for e.g., tox
    install_requires=[
        'nti.externalization',
        'nti.schema',
        'setuptools',
        'zope.cachedescriptors',
        'zope.component',
        'zope.configuration',
        'zope.interface',
        'zope.schema',
        # IPermission, the base of our privileges
        'zope.security',
    ],
    extras_require={
        'test': TESTS_REQUIRE,
    },
    zip_safe=False,
    package_dir={'': 'src'},
    packages=find_namespace_packages('src', include=['nti.*']),
    include_package_data=True,
    package_data={
        'nti.accessmanager': ['*.zcml'],
    },
)
