from helpdesk_troubleshooting.domain.models import GuideDocument

# ==============================================================================
# DISPLAY
# ==============================================================================

monitor_no_power = GuideDocument(
    title="Monitor No Power",
    category="Hardware",
    description="Monitor does not turn on, power light is off, screen stays dark.",
    steps=[
        "Check that the monitor power cable is firmly connected at both the monitor and the wall outlet.",
        "Press the monitor power button and confirm the power light turns on.",
        "Plug the monitor into a different outlet or swap the power cable with a known working one.",
    ],
)

monitor_no_signal = GuideDocument(
    title="Monitor Shows No Signal",
    category="Hardware",
    description="Monitor has power but displays 'No Signal' or a blank screen.",
    steps=[
        "Check that the video cable (HDMI, DisplayPort or VGA) is firmly connected to the PC and the monitor.",
        "Use the monitor menu buttons to select the correct input source.",
        "Restart the PC while the monitor is on.",
        "Try a different video cable or a different port on the PC.",
    ],
)

# ==============================================================================
# PC / BOOT
# ==============================================================================

pc_wont_boot = GuideDocument(
    title="PC Won't Start",
    category="Hardware",
    description="Desktop PC does not turn on or does not boot into Windows.",
    steps=[
        "Confirm the power cable is connected to the PC and the outlet, and that the power supply switch on the back is ON.",
        "Unplug all USB devices except the keyboard and mouse, then press the power button.",
        "Hold the power button for 15 seconds to drain residual power, then try again.",
        "Note any beeps or blinking lights during startup and report them to the service desk.",
    ],
)

pc_overheating = GuideDocument(
    title="PC Overheating or Shutting Down",
    category="Hardware",
    description="Computer is hot, fans are loud, or it shuts down unexpectedly.",
    steps=[
        "Make sure the PC vents are not blocked and there is space around the case.",
        "Gently clean dust from the vents using compressed air.",
        "Close unused programs and check whether the shutdowns continue.",
    ],
)

# ==============================================================================
# PERIPHERALS
# ==============================================================================

printer_not_printing = GuideDocument(
    title="Printer Not Printing",
    category="Peripherals",
    description="Print jobs are sent but nothing comes out of the printer.",
    steps=[
        "Check the printer is powered on and shows no error lights or paper jams.",
        "Make sure the printer has paper and the tray is closed properly.",
        "Open the print queue on the PC, cancel stuck jobs and print again.",
        "Turn the printer off for 30 seconds and turn it back on.",
    ],
)

keyboard_mouse = GuideDocument(
    title="Keyboard or Mouse Not Responding",
    category="Peripherals",
    description="Keyboard or mouse does nothing when used.",
    steps=[
        "Unplug the keyboard or mouse and plug it into a different USB port.",
        "For wireless devices, replace the batteries and re-pair the receiver.",
        "Restart the computer with the device connected.",
    ],
)

# ==============================================================================
# NETWORK
# ==============================================================================

no_wired_network = GuideDocument(
    title="No Network Connection (Wired)",
    category="Network",
    description="Desktop PC shows no internet or network access over an ethernet cable.",
    steps=[
        "Check that the ethernet cable is clicked in at both the PC and the wall port.",
        "Look for a blinking light next to the network port on the PC.",
        "Try a different ethernet cable or wall port.",
        "Restart the PC and check the connection again.",
    ],
)

HARDCODED_GUIDES = {
    guide.title: guide
    for guide in (
        monitor_no_power,
        monitor_no_signal,
        pc_wont_boot,
        pc_overheating,
        printer_not_printing,
        keyboard_mouse,
        no_wired_network,
    )
}
