from binder_outliner.gui.main_window import main

if __name__ == "__main__":
    main()
