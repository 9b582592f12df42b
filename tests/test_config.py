"""Deployment configuration tests."""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from verity_verifier import (
    ConfigurationError,
    DomainConfig,
    SolanaNetwork,
    TrustAnchor,
    convert_chain_id_to_cluster,
    convert_cluster_to_chain_id,
    load_deployment,
)
from verity_verifier.clusters import resolve_cluster

from attestation_factory import KYC_SCHEMA, VERIFIER_ADDRESS, VERIFIER_PUBLIC_KEY


EXAMPLE_DEPLOYMENTS = Path(__file__).resolve().parent.parent / "config" / "deployments.example.json"

# Compressed form of the verifier key (y is odd)
VERIFIER_COMPRESSED = "03" + VERIFIER_PUBLIC_KEY[:32].hex()


class TestClusters(unittest.TestCase):

    def test_cluster_to_chain_id(self):
        self.assertEqual(convert_cluster_to_chain_id("mainnet-beta"), SolanaNetwork.MAINNET_BETA)
        self.assertEqual(convert_cluster_to_chain_id("devnet"), 2)
        self.assertEqual(convert_cluster_to_chain_id("testnet"), 3)
        self.assertEqual(convert_cluster_to_chain_id("localnet"), 1337)
        self.assertIsNone(convert_cluster_to_chain_id("Localnet"))

    def test_chain_id_to_cluster(self):
        self.assertEqual(convert_chain_id_to_cluster(1), "mainnet-beta")
        self.assertEqual(convert_chain_id_to_cluster(1337), "localnet")
        self.assertIsNone(convert_chain_id_to_cluster(4))
        self.assertIsNone(convert_chain_id_to_cluster(None))

    def test_resolve_cluster(self):
        self.assertEqual(resolve_cluster("1337"), "localnet")
        self.assertEqual(resolve_cluster(3), "testnet")
        self.assertEqual(resolve_cluster(" devnet "), "devnet")
        self.assertEqual(resolve_cluster("staging-eu"), "staging-eu")
        with self.assertRaises(ValueError):
            resolve_cluster("42")


class TestDomainConfig(unittest.TestCase):

    def test_defaults(self):
        domain = DomainConfig(cluster="localnet")
        self.assertEqual(domain.name, "VerificationRegistry")
        self.assertEqual(domain.version, "1.0")
        self.assertEqual(domain.schema, KYC_SCHEMA)

    def test_cluster_has_no_default(self):
        with self.assertRaises(TypeError):
            DomainConfig()

    def test_empty_cluster_rejected(self):
        with self.assertRaises(ValueError):
            DomainConfig(cluster="")


class TestTrustAnchor(unittest.TestCase):

    def test_raw_key(self):
        anchor = TrustAnchor.from_hex(VERIFIER_PUBLIC_KEY.hex())
        self.assertEqual(anchor.public_key, VERIFIER_PUBLIC_KEY)

    def test_prefixed_key(self):
        anchor = TrustAnchor.from_hex("0x04" + VERIFIER_PUBLIC_KEY.hex())
        self.assertEqual(anchor.public_key, VERIFIER_PUBLIC_KEY)

    def test_compressed_key(self):
        anchor = TrustAnchor.from_hex(VERIFIER_COMPRESSED)
        self.assertEqual(anchor.public_key, VERIFIER_PUBLIC_KEY)

    def test_address(self):
        self.assertEqual(TrustAnchor(VERIFIER_PUBLIC_KEY).address, VERIFIER_ADDRESS)

    def test_not_a_curve_point(self):
        with self.assertRaises(ValueError):
            TrustAnchor.from_bytes(b"\x00" * 64)

    def test_wrong_length(self):
        with self.assertRaises(ValueError):
            TrustAnchor(public_key=VERIFIER_PUBLIC_KEY[:32])


class TestLoadDeployment(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "deployments.json")
        self.write({
            "deployments": {
                "localnet": {"trust_anchor": VERIFIER_PUBLIC_KEY.hex()},
                "devnet": {
                    "trust_anchor": VERIFIER_COMPRESSED,
                    "name": "VerificationRegistry",
                    "version": "2.0",
                    "schema": "centre.io/credentials/kyb",
                },
            }
        })

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, data):
        with open(self.path, "w", encoding="utf-8") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)

    def test_load_with_defaults(self):
        deployment = load_deployment("localnet", self.path)
        self.assertEqual(deployment.domain, DomainConfig(cluster="localnet"))
        self.assertEqual(deployment.trust_anchor.public_key, VERIFIER_PUBLIC_KEY)

    def test_load_with_overrides(self):
        deployment = load_deployment("devnet", self.path)
        self.assertEqual(deployment.domain.version, "2.0")
        self.assertEqual(deployment.domain.schema, "centre.io/credentials/kyb")
        self.assertEqual(deployment.trust_anchor.public_key, VERIFIER_PUBLIC_KEY)

    def test_chain_id(self):
        self.assertEqual(load_deployment(1337, self.path).domain.cluster, "localnet")
        self.assertEqual(load_deployment("2", self.path).domain.cluster, "devnet")

    def test_cluster_from_environment(self):
        env = {"VERITY_CLUSTER": "devnet", "VERITY_DEPLOYMENTS_PATH": self.path}
        with mock.patch.dict(os.environ, env):
            self.assertEqual(load_deployment().domain.cluster, "devnet")

    def test_missing_cluster_is_an_error(self):
        with mock.patch.dict(os.environ, {"VERITY_DEPLOYMENTS_PATH": self.path}):
            os.environ.pop("VERITY_CLUSTER", None)
            with self.assertRaises(ConfigurationError):
                load_deployment()

    def test_blank_cluster_is_an_error(self):
        with self.assertRaises(ConfigurationError):
            load_deployment("  ", self.path)

    def test_unknown_cluster(self):
        with self.assertRaises(ConfigurationError):
            load_deployment("mainnet-beta", self.path)

    def test_unknown_chain_id(self):
        with self.assertRaises(ConfigurationError):
            load_deployment(99, self.path)

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            load_deployment("localnet", os.path.join(self.tmp.name, "missing.json"))

    def test_invalid_json(self):
        self.write("{not json")
        with self.assertRaises(ConfigurationError):
            load_deployment("localnet", self.path)

    def test_unknown_keys_rejected(self):
        self.write({
            "deployments": {
                "localnet": {"trust_anchor": VERIFIER_PUBLIC_KEY.hex(), "clustr": "localnet"},
            }
        })
        with self.assertRaises(ConfigurationError):
            load_deployment("localnet", self.path)

    def test_missing_trust_anchor(self):
        self.write({"deployments": {"localnet": {}}})
        with self.assertRaises(ConfigurationError):
            load_deployment("localnet", self.path)

    def test_invalid_trust_anchor(self):
        self.write({"deployments": {"localnet": {"trust_anchor": "0xzz"}}})
        with self.assertRaises(ConfigurationError):
            load_deployment("localnet", self.path)

    def test_load_logged(self):
        with self.assertLogs("verity_verifier.audit", level="INFO") as logs:
            load_deployment("localnet", self.path)
        self.assertTrue(any("DEPLOYMENT_LOADED" in line for line in logs.output))

    def test_example_file(self):
        deployment = load_deployment("localnet", EXAMPLE_DEPLOYMENTS)
        self.assertEqual(deployment.trust_anchor.address, VERIFIER_ADDRESS)


if __name__ == "__main__":
    unittest.main()
