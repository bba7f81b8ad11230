"""Tests for custom resource create-or-update."""

import pytest

from src.infra.k8s import CustomResourceReconciler, KubernetesError, ReconcileOutcome


def _cluster(replicas=1):
    return {
        "apiVersion": "apps.kubeblocks.io/v1alpha1",
        "kind": "Cluster",
        "metadata": {"name": "shop", "namespace": "apps"},
        "spec": {"componentSpecs": [{"name": "mysql", "replicas": replicas}]},
    }


class TestCustomResourceReconciler:
    def test_first_reconcile_creates(self, sync_controller, fake_controller):
        outcome = CustomResourceReconciler(sync_controller).reconcile(_cluster())

        assert outcome is ReconcileOutcome.CREATED
        assert ("apps", "shop") in fake_controller.resources

    def test_second_reconcile_updates_with_current_version(
        self, sync_controller, fake_controller
    ):
        reconciler = CustomResourceReconciler(sync_controller)
        reconciler.reconcile(_cluster())

        outcome = reconciler.reconcile(_cluster(replicas=3))

        assert outcome is ReconcileOutcome.UPDATED
        stored = fake_controller.resources[("apps", "shop")]
        assert stored["spec"] == _cluster(replicas=3)["spec"]
        assert [name for name, _ in fake_controller.calls] == [
            "create_custom_resource",
            "create_custom_resource",
            "get_custom_resource",
            "update_custom_resource",
        ]

    def test_manifest_is_not_mutated(self, sync_controller):
        reconciler = CustomResourceReconciler(sync_controller)
        manifest = _cluster()
        reconciler.reconcile(manifest)

        reconciler.reconcile(manifest)

        assert "resourceVersion" not in manifest["metadata"]

    def test_other_create_errors_propagate(self, sync_controller, fake_controller):
        fake_controller.fail_on["create_custom_resource"] = KubernetesError("forbidden", 403)

        with pytest.raises(KubernetesError, match="forbidden"):
            CustomResourceReconciler(sync_controller).reconcile(_cluster())

    def test_update_conflict_is_not_retried(self, sync_controller, fake_controller):
        reconciler = CustomResourceReconciler(sync_controller)
        reconciler.reconcile(_cluster())
        fake_controller.fail_on["update_custom_resource"] = KubernetesError("conflict", 409)

        with pytest.raises(KubernetesError):
            reconciler.reconcile(_cluster())

        assert [n for n, _ in fake_controller.calls].count("update_custom_resource") == 1
