import os
import tempfile
import unittest

import lsst.utils.tests

from joyent.jenkins.build import ConfigurationError, DEFAULT_JENKINS_URL
from joyent.jenkins.config import JenkinsConfig, readConfigFile, parseAuth


class JenkinsConfigTestCase(lsst.utils.tests.TestCase):
    """Test merging of configuration sources"""
    def setUp(self):
        self.tempDir = tempfile.TemporaryDirectory()
        self.configFile = os.path.join(self.tempDir.name, "jenkins-build.yaml")
        # Ensure a real ~/.jenkins-build.yaml can't leak in
        self.environ = dict(JENKINS_BUILD_CONFIG=self.configFile)

    def tearDown(self):
        self.tempDir.cleanup()

    def writeConfig(self, text):
        with open(self.configFile, "w") as fd:
            fd.write(text)

    def testDefaults(self):
        self.writeConfig("")
        config = JenkinsConfig.create(environ=self.environ)
        self.assertEqual(config.url, DEFAULT_JENKINS_URL)
        self.assertIsNone(config.auth)
        with self.assertRaises(ConfigurationError):
            config.getAuth()

    def testPrecedence(self):
        """Flags beat the environment, which beats the file"""
        self.writeConfig("url: https://file.example.com\nauth: fileuser:filetoken\n")
        config = JenkinsConfig.create(environ=self.environ)
        self.assertEqual(config.url, "https://file.example.com")
        self.assertEqual(config.getAuth(), ("fileuser", "filetoken"))

        self.environ.update(JENKINS_URL="https://env.example.com", JENKINS_AUTH="envuser:envtoken")
        config = JenkinsConfig.create(environ=self.environ)
        self.assertEqual(config.url, "https://env.example.com")
        self.assertEqual(config.getAuth(), ("envuser", "envtoken"))

        config = JenkinsConfig.create(url="https://flag.example.com/", auth="flaguser:flagtoken",
                                      environ=self.environ)
        self.assertEqual(config.url, "https://flag.example.com")
        self.assertEqual(config.getAuth(), ("flaguser", "flagtoken"))

    def testAuthFile(self):
        authFile = os.path.join(self.tempDir.name, "token")
        with open(authFile, "w") as fd:
            fd.write("someone:abc123\n")
        self.writeConfig(f"authFile: {authFile}\n")
        config = JenkinsConfig.create(environ=self.environ)
        self.assertEqual(config.getAuth(), ("someone", "abc123"))
        # An explicit credential wins
        config = JenkinsConfig.create(auth="other:xyz", environ=self.environ)
        self.assertEqual(config.getAuth(), ("other", "xyz"))

        self.writeConfig(f"authFile: {authFile}.missing\n")
        with self.assertRaises(ConfigurationError):
            JenkinsConfig.create(environ=self.environ)

    def testBadFile(self):
        with self.assertRaises(ConfigurationError):
            readConfigFile(self.configFile)  # doesn't exist yet
        self.writeConfig("- just\n- a list\n")
        with self.assertRaises(ConfigurationError):
            JenkinsConfig.create(environ=self.environ)

    def testMalformedFile(self):
        self.writeConfig("url: [unclosed\n")
        with self.assertRaises(ConfigurationError):
            readConfigFile(self.configFile)
        with self.assertRaises(ConfigurationError):
            JenkinsConfig.create(environ=self.environ)

    def testNonStringValues(self):
        for text in ("url: 8080\n", "auth: [user, token]\n", "authFile: 12\n"):
            with self.subTest(text=text):
                self.writeConfig(text)
                with self.assertRaises(ConfigurationError):
                    JenkinsConfig.create(environ=self.environ)

    def testFileUnneeded(self):
        """A broken file is irrelevant when everything else is supplied"""
        self.writeConfig("url: [unclosed\n")
        config = JenkinsConfig.create(url="https://flag.example.com", auth="flaguser:flagtoken",
                                      environ=self.environ)
        self.assertEqual(config.url, "https://flag.example.com")
        self.environ.update(JENKINS_URL="https://env.example.com", JENKINS_AUTH="envuser:envtoken")
        config = JenkinsConfig.create(environ=self.environ)
        self.assertEqual(config.getAuth(), ("envuser", "envtoken"))

    def testRepr(self):
        config = JenkinsConfig(url="https://jenkins.example.com", auth="user:secret")
        self.assertNotIn("secret", repr(config))

    def testParseAuth(self):
        self.assertEqual(parseAuth("user:token"), ("user", "token"))
        self.assertEqual(parseAuth("user:tok:en"), ("user", "tok:en"))
        for bad in (None, "", "usertoken", ":token"):
            with self.subTest(auth=bad):
                with self.assertRaises(ConfigurationError):
                    parseAuth(bad)


class TestMemory(lsst.utils.tests.MemoryTestCase):
    pass


def setup_module(module):
    lsst.utils.tests.init()


if __name__ == "__main__":
    lsst.utils.tests.init()
    unittest.main()
