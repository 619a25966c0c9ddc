"""
Freedesktop notification server feeding a ``NotificationHistory``.

Registers ``org.freedesktop.Notifications`` on the session bus. When another
daemon already owns the name, the shell keeps running without one.
"""
import itertools
import logging

from PyQt6.QtCore import QObject, pyqtClassInfo, pyqtSlot
from PyQt6.QtDBus import QDBusAbstractAdaptor, QDBusConnection

from navshell.notifications import Notification, NotificationHistory

logger = logging.getLogger(__name__)

SERVICE = "org.freedesktop.Notifications"
PATH = "/org/freedesktop/Notifications"

INTROSPECTION = """
<interface name="org.freedesktop.Notifications">
  <method name="Notify">
    <arg direction="in" type="s" name="app_name"/>
    <arg direction="in" type="u" name="replaces_id"/>
    <arg direction="in" type="s" name="app_icon"/>
    <arg direction="in" type="s" name="summary"/>
    <arg direction="in" type="s" name="body"/>
    <arg direction="in" type="as" name="actions"/>
    <arg direction="in" type="a{sv}" name="hints"/>
    <arg direction="in" type="i" name="expire_timeout"/>
    <arg direction="out" type="u" name="id"/>
  </method>
  <method name="CloseNotification">
    <arg direction="in" type="u" name="id"/>
  </method>
  <method name="GetCapabilities">
    <arg direction="out" type="as" name="capabilities"/>
  </method>
</interface>
"""


@pyqtClassInfo("D-Bus Interface", SERVICE)
@pyqtClassInfo("D-Bus Introspection", INTROSPECTION)
class NotificationsAdaptor(QDBusAbstractAdaptor):

    def __init__(self, parent: QObject, history: NotificationHistory):
        super().__init__(parent)
        self.history = history
        self._ids = itertools.count(1)

    @pyqtSlot(str, "uint", str, str, str, "QStringList", "QVariantMap", int, result="uint")
    def Notify(self, app_name, replaces_id, app_icon, summary, body, actions, hints, expire_timeout):
        if replaces_id:
            old = self.history.find(replaces_id)
            if old is not None:
                self.history.remove(old)
            notification_id = replaces_id
        else:
            notification_id = next(self._ids)
        self.history.add(Notification(
            title=summary,
            text=body,
            icon=app_icon,
            app=app_name,
            id=notification_id,
        ))
        logger.debug(f"Notification {notification_id} from {app_name!r}: {summary!r}")
        return notification_id

    @pyqtSlot("uint")
    def CloseNotification(self, notification_id):
        notification = self.history.find(notification_id)
        if notification is not None:
            self.history.remove(notification)

    @pyqtSlot(result="QStringList")
    def GetCapabilities(self):
        return ["body"]


class NotificationService(QObject):
    def __init__(self, history: NotificationHistory, parent=None):
        super().__init__(parent)
        self.adaptor = NotificationsAdaptor(self, history)

    def register(self) -> bool:
        bus = QDBusConnection.sessionBus()
        if not bus.isConnected():
            logger.warning("No session bus, notifications will not be collected")
            return False
        if not bus.registerObject(PATH, self):
            logger.warning(f"Could not register {PATH} on the session bus")
            return False
        if not bus.registerService(SERVICE):
            logger.warning(f"{SERVICE} is owned by another daemon, not collecting notifications")
            bus.unregisterObject(PATH)
            return False
        logger.info(f"Collecting notifications as {SERVICE}")
        return True
