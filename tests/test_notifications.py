from sign_inventory.modules.notifications.service import NotificationCenter, NotificationLevel


class TestNotificationCenter:
    def test_pop_returns_each_once_in_order(self, notifications, clock):
        notifications.push(NotificationLevel.warning, "You are offline.")
        notifications.push(NotificationLevel.success, "Back online.")

        popped = notifications.pop_all()

        assert [n.message for n in popped] == ["You are offline.", "Back online."]
        assert popped[0].created_at == clock()
        assert notifications.pop_all() == []

    def test_oldest_dropped_when_full(self):
        center = NotificationCenter(max_size=2)
        for n in range(3):
            center.push(NotificationLevel.info, f"message {n}")

        assert len(center) == 2
        assert [n.message for n in center.pop_all()] == ["message 1", "message 2"]
